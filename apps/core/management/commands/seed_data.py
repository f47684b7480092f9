"""
Seed management command.

Populates the database with initial demo data:
  - 1 owner (professional) account with profile
  - 4 services (2 x 30-min, 2 x 60-min)
  - Weekly business hours (Mon–Fri split shift, Saturday morning)

Usage:
    python manage.py seed_data
    python manage.py seed_data --flush   # wipe and re-seed
    python manage.py seed_data --password s3cret
"""
from datetime import time

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import Profile, Role
from apps.services.models import BusinessHourWindow, Service

OWNER_USERNAME = 'professional'


class Command(BaseCommand):
    help = 'Seed a demo professional with services and business hours'

    def add_arguments(self, parser):
        parser.add_argument(
            '--flush', action='store_true',
            help='Delete the demo professional\'s services and hours before re-seeding',
        )
        parser.add_argument(
            '--password', default='changeme123',
            help='Password for a newly created demo professional',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()

        self.stdout.write('Seeding professional...')
        owner, created = User.objects.get_or_create(
            username=OWNER_USERNAME,
            defaults={'email': 'professional@example.com', 'first_name': 'Joao', 'last_name': 'Silva'},
        )
        if created:
            owner.set_password(options['password'])
            owner.save(update_fields=['password'])
        Profile.objects.update_or_create(
            user=owner,
            defaults={'role': Role.OWNER, 'display_name': 'Joao Silva', 'phone': '5511999999999'},
        )
        self.stdout.write(self.style.SUCCESS(
            f"  ✔ professional '{OWNER_USERNAME}' {'created' if created else 'already exists'}"
        ))

        if options['flush']:
            self.stdout.write('Flushing existing services and hours...')
            BusinessHourWindow.objects.filter(professional=owner).delete()
            # Services with booking history are PROTECTed by their appointments.
            services = Service.objects.filter(professional=owner)
            kept = services.filter(appointments__isnull=False).distinct().count()
            services.filter(appointments__isnull=True).delete()
            if kept:
                self.stdout.write(self.style.WARNING(f'  ! Kept {kept} services that have appointments'))

        # ── Services ──────────────────────────────────────────────────────────
        self.stdout.write('Seeding services...')
        services_data = [
            {'name': 'Haircut',        'duration_minutes': 30, 'price': 45,  'description': 'Classic cut with wash and styling.'},
            {'name': 'Beard Trim',     'duration_minutes': 30, 'price': 30,  'description': 'Shape and trim with hot towel finish.'},
            {'name': 'Haircut + Beard', 'duration_minutes': 60, 'price': 70, 'description': 'Full cut and beard service.'},
            {'name': 'Hair Colouring', 'duration_minutes': 60, 'price': 120, 'description': 'Single-process colour application.'},
        ]
        for svc in services_data:
            Service.objects.get_or_create(
                professional=owner, name=svc['name'], duration_minutes=svc['duration_minutes'],
                defaults={'price': svc['price'], 'description': svc['description']},
            )
        self.stdout.write(self.style.SUCCESS(f'  ✔ {len(services_data)} services ready'))

        # ── Business hours (0=Sunday .. 6=Saturday) ───────────────────────────
        self.stdout.write('Seeding business hours...')
        windows = [(day, time(9, 0), time(12, 0)) for day in range(1, 6)]
        windows += [(day, time(13, 0), time(18, 0)) for day in range(1, 6)]
        windows.append((6, time(9, 0), time(13, 0)))
        for day, start, end in windows:
            BusinessHourWindow.objects.get_or_create(
                professional=owner, day_of_week=day, start_time=start,
                defaults={'end_time': end},
            )
        self.stdout.write(self.style.SUCCESS('  ✔ Business hours set (Mon–Fri 09–12 & 13–18, Sat 09–13)'))

        self.stdout.write(self.style.SUCCESS('\n✅ Seed complete!'))
