"""
Video Pipeline for Video Background Eraser
==========================================

Feeds the frames of a video file or image sequence through a
:class:`VideoBackgroundEraser` strictly in order and writes the RGBA
cutouts to disk.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generator, List, Optional, Union

import cv2
import numpy as np

from video_bg_eraser.pipeline.eraser import FrameResult, VideoBackgroundEraser
from video_bg_eraser.utils.image import load_image, save_image

logger = logging.getLogger(__name__)


@dataclass
class VideoConfig:
    """Video processing configuration."""
    start_frame: int = 0
    end_frame: Optional[int] = None      # Inclusive
    output_directory: Optional[Path] = None
    output_prefix: str = "frame"
    frame_digits: int = 6


class VideoPipeline:
    """
    Sequential video processing.

    Example:
        >>> pipeline = VideoPipeline(eraser, VideoConfig(output_directory=Path("out")))
        >>>
        >>> # Process video file
        >>> for result in pipeline.process_video("input.mp4"):
        ...     print(f"Frame {result.frame_index}")
        >>>
        >>> # Process image sequence
        >>> for result in pipeline.process_sequence("frames/", pattern="*.png"):
        ...     pass
    """

    def __init__(
        self,
        eraser: VideoBackgroundEraser,
        config: Optional[VideoConfig] = None,
    ):
        self.eraser = eraser
        self.config = config or VideoConfig()

    def process_video(
        self,
        video_path: Union[str, Path],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Generator[FrameResult, None, None]:
        """
        Process a video file.

        Args:
            video_path: Path to video file
            progress_callback: Callback for progress updates (done, total)

        Yields:
            FrameResult for each frame
        """
        video_path = Path(video_path)
        cap = cv2.VideoCapture(str(video_path))

        if not cap.isOpened():
            raise RuntimeError(f"Failed to open video: {video_path}")

        total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))

        # Calculate frame range
        start_frame = self.config.start_frame
        end_frame = self.config.end_frame
        if end_frame is None or (total_frames > 0 and end_frame >= total_frames):
            end_frame = total_frames - 1 if total_frames > 0 else None

        if start_frame > 0:
            cap.set(cv2.CAP_PROP_POS_FRAMES, start_frame)

        total = end_frame - start_frame + 1 if end_frame is not None else 0
        logger.info("Processing %s (%d frames)", video_path.name, total)

        self.eraser.reset()
        frame_idx = start_frame

        try:
            while end_frame is None or frame_idx <= end_frame:
                ret, frame = cap.read()
                if not ret:
                    break

                # Convert BGR to RGB
                frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

                result = self._process_frame(frame_rgb, frame_idx)

                if progress_callback:
                    progress_callback(frame_idx - start_frame + 1, total)

                frame_idx += 1
                yield result

        finally:
            cap.release()

    def process_sequence(
        self,
        input_dir: Union[str, Path],
        pattern: str = "*.png",
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Generator[FrameResult, None, None]:
        """
        Process an image sequence.

        Args:
            input_dir: Directory containing frames
            pattern: Glob pattern for frame files
            progress_callback: Callback for progress updates (done, total)

        Yields:
            FrameResult for each frame
        """
        frames = self.list_sequence(input_dir, pattern)
        total_frames = len(frames)

        self.eraser.reset()

        for i, frame_path in enumerate(frames):
            frame = load_image(frame_path)
            result = self._process_frame(frame, self.config.start_frame + i)

            if progress_callback:
                progress_callback(i + 1, total_frames)

            yield result

    def list_sequence(self, input_dir: Union[str, Path], pattern: str = "*.png") -> List[Path]:
        """Sorted frame files of a sequence, restricted to the configured range."""
        input_dir = Path(input_dir)
        frames = sorted(input_dir.glob(pattern))

        if not frames:
            raise ValueError(f"No frames found matching pattern: {pattern}")

        start_idx = self.config.start_frame
        end_idx = self.config.end_frame
        if end_idx is None:
            end_idx = len(frames) - 1
        end_idx = min(end_idx, len(frames) - 1)

        return frames[start_idx:end_idx + 1]

    def _process_frame(self, frame: np.ndarray, frame_idx: int) -> FrameResult:
        result = self.eraser.process(frame)
        result.metadata["source_index"] = frame_idx

        if self.config.output_directory is not None:
            path = self.output_path(frame_idx)
            save_image(result.composite, path)
            result.metadata["output_path"] = str(path)

        return result

    def output_path(self, frame_idx: int) -> Path:
        name = f"{self.config.output_prefix}_{frame_idx:0{self.config.frame_digits}d}.png"
        return Path(self.config.output_directory) / name
