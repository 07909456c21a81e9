import os
import shutil

from django.conf import settings


def _resolve(setting_name: str, fallback: str) -> str | None:
    exe = getattr(settings, setting_name, None)
    if exe:
        exe = os.path.expandvars(os.path.expanduser(str(exe)))
        if os.path.isfile(exe):
            return exe
        found = shutil.which(exe)
        if found:
            return found
    return shutil.which(fallback)


def resolve_ffmpeg_bin() -> str | None:
    return _resolve("FFMPEG_BIN", "ffmpeg")


def resolve_ffprobe_bin() -> str | None:
    return _resolve("FFPROBE_BIN", "ffprobe")
