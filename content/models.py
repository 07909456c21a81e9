# content/models.py
from django.db import models


class PackContent(models.Model):
    """
    Content index of one pack: an ordered list of item dicts (see items.py).

    The catalog owns this document; this service appends upload entries and
    patches reprocessing status fields by key, never reordering the list.
    """

    pack_id = models.CharField(max_length=128, primary_key=True)
    vendor_id = models.CharField(max_length=128, db_index=True)
    vendor_username = models.CharField(max_length=150, blank=True, default="")
    title = models.CharField(max_length=255, blank=True, default="")
    content = models.JSONField(default=list, blank=True)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["pack_id"]

    def __str__(self) -> str:
        return f"{self.pack_id} ({self.vendor_id})"

    def find_item(self, key: str):
        for entry in self.content or []:
            if isinstance(entry, dict) and entry.get("key") == key:
                return entry
        return None
