from django.core.management.base import BaseCommand

from shop.models import DownloadVerification


class Command(BaseCommand):
    help = 'Delete download verifications whose expiry has passed'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='Report expired verifications without deleting them')

    def handle(self, *args, **options):
        expired = DownloadVerification.objects.expired()
        count = expired.count()

        if not count:
            self.stdout.write(self.style.SUCCESS('No expired download verifications found.'))
            return

        if options['dry_run']:
            self.stdout.write(f'Found {count} expired download verification(s). Nothing deleted (dry run).')
            return

        expired.delete()
        self.stdout.write(self.style.SUCCESS(f'Deleted {count} expired download verification(s).'))
