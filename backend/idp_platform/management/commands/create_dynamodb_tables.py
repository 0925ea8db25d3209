import json

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from idp_platform.exceptions import StorageError
from idp_platform.repositories.dynamodb import build_resource, ensure_tables


class Command(BaseCommand):
    help = "Create any missing DynamoDB tables for the IDP entities."

    def add_arguments(self, parser):
        parser.add_argument("--prefix", dest="prefix", help="Table name prefix (defaults to IDP_DYNAMODB_TABLE_PREFIX)")
        parser.add_argument("--region", dest="region", help="AWS region (defaults to IDP_AWS_REGION)")
        parser.add_argument("--endpoint-url", dest="endpoint_url", help="DynamoDB endpoint, e.g. a local emulator")

    def handle(self, *args, **options):
        prefix = options.get("prefix")
        if prefix is None:
            prefix = getattr(settings, "IDP_DYNAMODB_TABLE_PREFIX", "")
        resource = build_resource(
            region=options.get("region") or getattr(settings, "IDP_AWS_REGION", ""),
            endpoint_url=options.get("endpoint_url") or getattr(settings, "IDP_DYNAMODB_ENDPOINT_URL", ""),
        )
        try:
            created = ensure_tables(resource, prefix)
        except StorageError as exc:
            raise CommandError(exc.message) from exc
        self.stdout.write(json.dumps({"prefix": prefix, "created": created}, indent=2))
