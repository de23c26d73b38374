import json

from django.core.management.base import BaseCommand, CommandError

from blockchain.services import verify_chain


class Command(BaseCommand):
    help = "Scan the whole ledger and report every linkage violation."

    def add_arguments(self, parser):
        parser.add_argument('--json', action='store_true', help="Print the report as JSON.")

    def handle(self, *args, **options):
        report = verify_chain()

        if options['json']:
            self.stdout.write(json.dumps(report.to_dict(), indent=2))
        else:
            self.stdout.write(f"Blocks checked: {report.blocks_checked}")
            for violation in report.violations:
                where = f"Block #{violation.block_number}" if violation.block_number is not None else "Chain"
                self.stdout.write(self.style.ERROR(f"  {where}: {violation.kind} - {violation.detail}"))

        if not report.is_valid:
            raise CommandError(f"Chain is invalid ({len(report.violations)} violation(s))")
        if not options['json']:
            self.stdout.write(self.style.SUCCESS("Chain is valid."))
