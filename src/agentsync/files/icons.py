"""Agent icon processing and avatar storage."""

from __future__ import annotations

import hashlib
import logging
from io import BytesIO
from pathlib import Path
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from agentsync.agents.types import Avatar
from agentsync.config import Settings
from agentsync.errors import AvatarProcessingFailure
from agentsync.files.resolver import FileKind, FileResolver

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"})


class AvatarStore(Protocol):
    def store_avatar(self, owner_id: str, data: bytes, suffix: str) -> Avatar: ...


def is_image_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def validate_image_size(path: Path, max_size_mb: float = 5.0) -> None:
    size_mb = path.stat().st_size / (1024 * 1024)
    if size_mb > max_size_mb:
        raise AvatarProcessingFailure(
            f"Image file too large: {size_mb:.2f}MB (max: {max_size_mb}MB)"
        )


def process_icon_file(
    resolver: FileResolver,
    icon_path: str,
    agent_id: str,
    avatar_store: AvatarStore,
    *,
    max_size_mb: float = 5.0,
) -> Avatar:
    """Load an icon referenced by an agent declaration and store it as the agent's avatar."""
    resolved = resolver.resolve_path(icon_path)
    if not is_image_file(resolved):
        raise AvatarProcessingFailure(
            f"Invalid icon file format: {resolved.suffix or '(none)'}. Must be an image file."
        )
    # Size is checked before reading; a missing file is reported by the resolver.
    if resolved.is_file():
        validate_image_size(resolved, max_size_mb)
    data = resolver.resolve(icon_path, FileKind.BINARY)
    avatar = avatar_store.store_avatar(agent_id, data, resolved.suffix.lower())
    logger.info("Stored icon for agent %s at %s", agent_id, avatar.path)
    return avatar


class LocalAvatarStore:
    """Writes resized avatars below a local directory."""

    source = "local"

    def __init__(self, root: Path | str, *, size_px: int = 256) -> None:
        self.root = Path(root)
        self.size_px = size_px

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalAvatarStore:
        return cls(settings.avatar_dir, size_px=settings.avatar_size_px)

    def store_avatar(self, owner_id: str, data: bytes, suffix: str) -> Avatar:
        if suffix == ".svg":
            payload, out_suffix = data, ".svg"
        else:
            payload, out_suffix = self._resize(data)
        target_dir = self.root / owner_id
        # Named by content so an unchanged icon keeps its path across passes.
        digest = hashlib.sha256(data).hexdigest()[:16]
        target = target_dir / f"agent-{owner_id}-{digest}{out_suffix}"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            if not target.exists():
                target.write_bytes(payload)
        except OSError as exc:
            raise AvatarProcessingFailure(f"Failed to write avatar: {exc}") from exc
        return Avatar(path=str(target), source=self.source)

    def _resize(self, data: bytes) -> tuple[bytes, str]:
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise AvatarProcessingFailure(f"Unreadable image data: {exc}") from exc

        orig_w, orig_h = img.size
        if orig_w > self.size_px or orig_h > self.size_px:
            ratio = min(self.size_px / orig_w, self.size_px / orig_h)
            new_size = (max(1, int(orig_w * ratio)), max(1, int(orig_h * ratio)))
            img = img.resize(new_size, Image.Resampling.LANCZOS)

        out = BytesIO()
        # GIF resize loses animation; PNG keeps transparency for the rest.
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        img.save(out, format="PNG")
        return out.getvalue(), ".png"
