from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from apps.sellers.models import SellerProfile
from apps.sellers.services.subaccounts import BatchResult, SubaccountProvisioner, provision_subaccounts


class Command(BaseCommand):
    help = "Create Paystack subaccounts for sellers with a verified default bank account."

    def add_arguments(self, parser):
        parser.add_argument(
            "--seller",
            action="append",
            dest="sellers",
            metavar="SELLER_ID",
            help="Only provision this seller id (repeatable)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report eligibility without calling Paystack",
        )
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Skip the confirmation prompt",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Sellers per batch before pausing",
        )

    def handle(self, *args, **options):
        batch_size = options["batch_size"]
        if batch_size is not None and batch_size < 1:
            raise CommandError("--batch-size must be at least 1")

        sellers = SellerProfile.objects.select_related("user", "subaccount").order_by("created_at", "id")
        try:
            if options["sellers"]:
                sellers = sellers.filter(seller_id__in=options["sellers"])
            found = sellers.exists()
        except ValidationError as exc:
            raise CommandError(f"Invalid seller id: {exc.messages[0]}") from exc

        if not found:
            self.stdout.write(self.style.WARNING("No sellers found"))
            return

        provisioner = SubaccountProvisioner(batch_size=batch_size)

        if options["dry_run"]:
            result = BatchResult()
            eligible = provisioner.filter_eligible(sellers, result)
            for seller in eligible:
                self.stdout.write(self.style.SUCCESS(f"✓ Eligible: {seller.display_name}"))
            self.stdout.write(result.as_report())
            return

        if not options["yes"]:
            answer = input(f"Create Paystack subaccounts for up to {sellers.count()} seller(s)? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                self.stdout.write(self.style.WARNING("Aborted"))
                return

        result = provision_subaccounts(seller_filter=options["sellers"], batch_size=batch_size)
        self.stdout.write(result.as_report())

        if result.failed:
            self.stdout.write(self.style.ERROR(f"✗ {len(result.failed)} seller(s) failed"))
        else:
            self.stdout.write(self.style.SUCCESS(f"✓ Created {len(result.created)} subaccount(s)"))
