import json

from django.core.management.base import BaseCommand

from idp_platform.services.api_keys import expire_keys


class Command(BaseCommand):
    help = "Deactivate expired API keys and rotated keys past their grace period."

    def handle(self, *args, **options):
        result = expire_keys()
        self.stdout.write(json.dumps(result, indent=2, default=str))
