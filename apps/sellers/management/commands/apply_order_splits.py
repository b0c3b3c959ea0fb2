from django.core.management.base import BaseCommand, CommandError

from apps.sellers.models import Order
from apps.sellers.services.ledger import LedgerConflictError, apply_order_splits
from apps.sellers.services.utils import format_naira


class Command(BaseCommand):
    help = "Credit seller wallets for paid orders. Orders already credited are left alone."

    def add_arguments(self, parser):
        parser.add_argument("order_numbers", nargs="+", help="Order number(s) to process")

    def handle(self, *args, **options):
        failures = 0

        for order_number in options["order_numbers"]:
            try:
                order = Order.objects.get(order_number=order_number)
            except Order.DoesNotExist:
                self.stdout.write(self.style.ERROR(f"✗ Order not found: {order_number}"))
                failures += 1
                continue

            try:
                result = apply_order_splits(order)
            except LedgerConflictError as exc:
                self.stdout.write(self.style.ERROR(f"✗ {order_number}: {exc}"))
                failures += 1
                continue

            if result.already_processed:
                self.stdout.write(self.style.WARNING(f"- {order_number}: already credited"))
                continue

            for split in result.applied:
                self.stdout.write(self.style.SUCCESS(
                    f"✓ {order_number}: {split.seller.display_name} credited {format_naira(split.seller_amount)}"
                ))

            for entry in result.flagged:
                self.stdout.write(self.style.ERROR(
                    f"✗ {order_number}: split for seller {entry['seller_id']} failed validation"
                ))

            if result.flagged:
                failures += 1

        if failures:
            raise CommandError(f"{failures} order(s) could not be fully credited")
