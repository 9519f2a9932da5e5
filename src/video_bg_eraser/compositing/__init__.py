"""Final RGBA compositing."""

from video_bg_eraser.compositing.compositor import (
    Compositor,
    CompositorConfig,
    build_matting_input,
    clamp_alpha,
)

__all__ = ["Compositor", "CompositorConfig", "build_matting_input", "clamp_alpha"]
