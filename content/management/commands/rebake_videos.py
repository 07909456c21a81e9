from django.core.management.base import BaseCommand, CommandError

from content import reprocessor
from content.items import VideoItem, parse_items
from content.models import PackContent


class Command(BaseCommand):
    help = "Bake the vendor watermark into a pack's videos that failed or were never processed."

    def add_arguments(self, parser):
        parser.add_argument("pack_id")
        parser.add_argument("--key", action="append", dest="keys", default=[],
                            help="Only this key (repeatable).")
        parser.add_argument("--force", action="store_true",
                            help="Also re-bake videos already marked processed.")

    def handle(self, *args, pack_id, keys, force, **options):
        pack = PackContent.objects.filter(pk=pack_id).first()
        if pack is None:
            raise CommandError(f"pack {pack_id} not found")

        videos = [i for i in parse_items(pack.content) if isinstance(i, VideoItem)]
        if keys:
            unknown = set(keys) - {v.key for v in videos}
            if unknown:
                raise CommandError(f"not videos in this pack: {', '.join(sorted(unknown))}")
            videos = [v for v in videos if v.key in keys]
        if not force:
            videos = [v for v in videos if not v.processed]

        if not videos:
            self.stdout.write("nothing to bake")
            return

        vendor = pack.vendor_username or pack.vendor_id
        outcomes = reprocessor.build_reprocessor().process_pack(pack.pk, videos, vendor)
        for o in outcomes:
            line = f"{o.status:9} {o.key}"
            if o.ok:
                self.stdout.write(self.style.SUCCESS(line))
            else:
                self.stdout.write(self.style.ERROR(f"{line}  {o.error}"))

        if any(not o.ok for o in outcomes):
            raise CommandError("some videos failed to bake")
