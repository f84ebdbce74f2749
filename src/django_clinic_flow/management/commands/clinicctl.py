"""Django management command for clinicctl."""

import sys

from django.core.management.base import BaseCommand

from django_clinic_flow.cli import cli


class Command(BaseCommand):
    help = (
        "Terminal UI for clinic queues, visits and stock. "
        "Subcommands: queue, visit, low-stock, pending, stats, render."
    )

    def add_arguments(self, parser):
        parser.add_argument("cli_args", nargs="*", metavar="args")

    def handle(self, *args, **options):
        cli_args = list(options.get("cli_args", []))
        if not cli_args:
            cli_args = ["--help"]
        try:
            cli(args=cli_args, standalone_mode=True)
        except SystemExit as e:
            if e.code != 0:
                sys.exit(e.code)
