class WatermarkError(Exception):
    reason = "watermark_failed"


class TranscodeTimeout(WatermarkError):
    reason = "transcode_timeout"


class TranscodeFailure(WatermarkError):
    reason = "transcode_failed"

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class FFmpegNotFound(TranscodeFailure):
    reason = "ffmpeg_not_found"
