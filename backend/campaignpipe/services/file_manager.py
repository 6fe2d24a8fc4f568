"""
File management service for campaignpipe.

Handles artifact storage with path traversal protection.
Creates per-run directories with subdirectories for images and video.
"""
import uuid
from pathlib import Path

from campaignpipe.config import settings


class FileManager:
    """
    Manage filesystem artifacts for campaign runs.

    Creates structured directories:
    - {base_dir}/{run_id}/images/ - Logo and marketing images
    - {base_dir}/{run_id}/video/ - Downloaded video ad

    Implements path traversal protection to prevent directory escape attacks.
    """

    def __init__(self, base_dir: str | Path | None = None):
        """
        Initialize FileManager with base directory.

        Args:
            base_dir: Root directory for all run artifacts.
                     If None, uses settings.storage.tmp_dir
        """
        if base_dir is None:
            base_dir = settings.storage.tmp_dir

        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_run_dir(self, run_id: uuid.UUID | str) -> Path:
        """
        Get or create run directory with subdirectories.

        Args:
            run_id: Identifier of the run

        Returns:
            Resolved Path to run directory

        Raises:
            ValueError: If run_id creates path outside base_dir (traversal attack)
        """
        run_dir = (self.base_dir / str(run_id)).resolve()

        if not run_dir.is_relative_to(self.base_dir) or run_dir == self.base_dir:
            raise ValueError("Invalid run path")

        run_dir.mkdir(exist_ok=True)
        (run_dir / "images").mkdir(exist_ok=True)
        (run_dir / "video").mkdir(exist_ok=True)

        return run_dir

    def save_image(self, run_id: uuid.UUID | str, name: str, data: bytes) -> Path:
        """
        Save a generated image.

        Args:
            run_id: Identifier of the run
            name: File stem (e.g., 'logo', 'marketing_0')
            data: PNG image data

        Returns:
            Path to saved image file
        """
        filepath = self.get_run_dir(run_id) / "images" / f"{Path(name).name}.png"
        filepath.write_bytes(data)
        return filepath

    def save_video(
        self, run_id: uuid.UUID | str, data: bytes, filename: str = "campaign_ad.mp4",
    ) -> Path:
        """
        Save the downloaded video ad.

        Args:
            run_id: Identifier of the run
            data: MP4 video data
            filename: Output filename (default: 'campaign_ad.mp4')

        Returns:
            Path to saved video file
        """
        filepath = self.get_run_dir(run_id) / "video" / Path(filename).name
        filepath.write_bytes(data)
        return filepath
