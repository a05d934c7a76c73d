import os
import sys
import logging

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend"))

from mediahub import create_app, socketio  # noqa: E402
from mediahub.config import PORT, YTDLP_PATH  # noqa: E402
from mediahub.utils import find_ffmpeg  # noqa: E402

logger = logging.getLogger(__name__)

app = create_app()

if __name__ == "__main__":
    import shutil

    ffmpeg = find_ffmpeg()
    if ffmpeg:
        logger.info(f"FFmpeg found at: {ffmpeg}")
    else:
        logger.warning("FFmpeg not found! Merged video and mp3 conversion will be unavailable.")
        logger.warning("Install FFmpeg: https://ffmpeg.org/download.html")
    if not shutil.which(YTDLP_PATH):
        logger.warning(f"{YTDLP_PATH} not found on PATH, fallback extraction will fail.")

    socketio.run(app, host="0.0.0.0", port=PORT, allow_unsafe_werkzeug=True)
