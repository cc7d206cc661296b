"""
Models Package for Tubely.

Example Usage:
    ```python
    from tubely.models import Video, AspectCategory

    video = Video(user_id="user123", title="Launch day")
    ```
"""

from tubely.models.video import AspectCategory, Video, VideoCreate, VideoResponse


__all__ = ["AspectCategory", "Video", "VideoCreate", "VideoResponse"]
