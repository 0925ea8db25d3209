import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from idp_platform.exceptions import StorageError
from idp_platform.seeds import apply_seeds


class Command(BaseCommand):
    help = "Load the reference cloud catalog (and optionally demo data) into the active store."

    def add_arguments(self, parser):
        parser.add_argument("--demo", action="store_true", help="Also load demo teams, blueprints and stacks")
        parser.add_argument("--dry-run", action="store_true", help="Report changes without writing")
        parser.add_argument("--path", dest="path", help="Directory holding catalog.json and demo.json")

    def handle(self, *args, **options):
        root = Path(options["path"]) if options.get("path") else None
        try:
            result = apply_seeds(
                include_demo=bool(options.get("demo")),
                dry_run=bool(options.get("dry_run")),
                root=root,
            )
        except (OSError, ValueError) as exc:
            raise CommandError(f"Unable to read seed data: {exc}") from exc
        except StorageError as exc:
            raise CommandError(exc.message) from exc
        self.stdout.write(json.dumps(result, indent=2, default=str))
