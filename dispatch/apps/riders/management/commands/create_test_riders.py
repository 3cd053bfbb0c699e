"""
Management command to create demo riders with initial locations.
Usage: python manage.py create_test_riders
"""
from decimal import Decimal

from django.core.management.base import BaseCommand

from apps.riders.models import Rider
from apps.riders.services import rider_service


class Command(BaseCommand):
    help = "Create demo riders with initial locations around Jakarta"

    DEFAULT_LOCATIONS = [
        {"lat": -6.2088, "lng": 106.8456, "name": "Rider Central"},
        {"lat": -6.1751, "lng": 106.8650, "name": "Rider North"},
        {"lat": -6.2615, "lng": 106.7837, "name": "Rider South West"},
        {"lat": -6.2297, "lng": 106.9239, "name": "Rider East"},
        {"lat": -6.3011, "lng": 106.8165, "name": "Rider South"},
    ]

    def add_arguments(self, parser):
        parser.add_argument(
            "--count",
            type=int,
            default=len(self.DEFAULT_LOCATIONS),
            help="Number of demo riders to create (default: 5)",
        )

    def handle(self, *args, **options):
        count = options["count"]
        created_count = 0

        for i in range(count):
            location_data = self.DEFAULT_LOCATIONS[i % len(self.DEFAULT_LOCATIONS)]
            rider, created = Rider.objects.get_or_create(
                phone=f"0812000{i:04d}",
                defaults={
                    "name": location_data["name"] if i < len(self.DEFAULT_LOCATIONS) else f"{location_data['name']} {i + 1}",
                    "rating": Decimal("4.0") + Decimal(i % 10) / 10,
                    "stock_count": 10 + i,
                    "is_active": True,
                    "is_online": i % 2 == 0,
                    "is_shift_active": True,
                },
            )

            if not created:
                self.stdout.write(
                    self.style.WARNING(f"Rider with phone {rider.phone} already exists, skipping...")
                )
                continue

            rider_service.update_rider_location(
                str(rider.id),
                lat=location_data["lat"],
                lng=location_data["lng"],
                accuracy=10.0,
                speed=0.0,
            )
            created_count += 1
            self.stdout.write(
                self.style.SUCCESS(
                    f"Created rider: {rider.name} (Phone: {rider.phone}) at "
                    f"({location_data['lat']}, {location_data['lng']})"
                )
            )

        self.stdout.write(self.style.SUCCESS(f"\nCreated {created_count} demo riders with locations"))
