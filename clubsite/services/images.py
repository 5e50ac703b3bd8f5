"""Fallback-aware image rendering.

Each rendered image is a small state machine (Loading, Displayed, Errored).
A new ``src`` always resets to Loading. Storage URLs missing both the access
token and the deliver-media flag are rejected before any load is attempted.
In Errored the caller's fallback image is shown, or a placeholder block
carrying the alt text. There is exactly one load attempt per ``src``.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Optional

from flask import current_app, has_app_context
from markupsafe import Markup, escape

from clubsite.services.errors import InvalidImageUrl
from clubsite.services.sanitize import IMAGE_PLACEHOLDER
from clubsite.services.urls import DEFAULT_STORAGE_HOST, DELIVER_MEDIA_FLAG, TOKEN_PARAM, names_storage_host

PLACEHOLDER_SIZE = '100px'


class ImageState(Enum):
    LOADING = "loading"
    DISPLAYED = "displayed"
    ERRORED = "errored"


def validate_image_url(src: str | None, storage_host: str = DEFAULT_STORAGE_HOST) -> str:
    """Return ``src`` when it may be loaded.

    Raises:
        InvalidImageUrl: empty source, sanitizer placeholder, or a storage URL
            without both its token and media flag
    """
    if not src:
        raise InvalidImageUrl('No image source')
    if src == IMAGE_PLACEHOLDER:
        raise InvalidImageUrl('Image was removed before saving and never uploaded')
    if names_storage_host(src, storage_host) and TOKEN_PARAM not in src and DELIVER_MEDIA_FLAG not in src:
        raise InvalidImageUrl(f"Storage URL missing authentication token: {src}")
    return src


def _style_attr(style: Dict[str, str]) -> str:
    return ';'.join(f"{name}:{value}" for name, value in style.items())


class ImageWithFallback:
    """Render state for one image."""

    def __init__(
        self,
        src: str | None,
        alt: str = '',
        fallback_src: str = '',
        css_class: str = '',
        style: Optional[Dict[str, str]] = None,
        storage_host: str | None = None,
    ):
        self.alt = alt
        self.fallback_src = fallback_src
        self.css_class = css_class
        self.style = dict(style or {})
        if storage_host is None:
            storage_host = current_app.config.get('STORAGE_HOST', DEFAULT_STORAGE_HOST) if has_app_context() else DEFAULT_STORAGE_HOST
        self.storage_host = storage_host
        self.src: str | None = None
        self.state = ImageState.LOADING
        self._attempted = False
        self.set_src(src)

    def set_src(self, src: str | None) -> ImageState:
        """Hard reset for a new source, then run the synchronous shape check."""
        self.src = src
        self.state = ImageState.LOADING
        self._attempted = False
        try:
            validate_image_url(src, self.storage_host)
        except InvalidImageUrl as e:
            if has_app_context():
                current_app.logger.warning(str(e))
            self.state = ImageState.ERRORED
        return self.state

    def mark_loaded(self) -> ImageState:
        if self.state is ImageState.LOADING:
            self.state = ImageState.DISPLAYED
        return self.state

    def mark_failed(self) -> ImageState:
        if self.state is ImageState.LOADING:
            if has_app_context():
                current_app.logger.error(f"Failed to load image: {self.src}")
            self.state = ImageState.ERRORED
        return self.state

    def load(self, probe: Callable[[str], bool]) -> ImageState:
        """Make the single load attempt for the current source.

        A probe that raises counts as a failed load.
        """
        if self.state is not ImageState.LOADING or self._attempted:
            return self.state
        self._attempted = True
        try:
            ok = probe(self.src)
        except Exception as e:
            if has_app_context():
                current_app.logger.warning(f"Image probe raised for {self.src}: {e}")
            ok = False
        return self.mark_loaded() if ok else self.mark_failed()

    def render(self) -> Markup:
        if self.state is ImageState.ERRORED:
            if self.fallback_src:
                return self._img(self.fallback_src, f"{self.css_class} image-fallback".strip(), with_fallback=False)
            return self._placeholder()
        return self._img(self.src, self.css_class, with_fallback=bool(self.fallback_src))

    def _img(self, src: str, css_class: str, with_fallback: bool) -> Markup:
        attrs = [f'src="{escape(src)}"', f'alt="{escape(self.alt)}"']
        if css_class:
            attrs.append(f'class="{escape(css_class)}"')
        if self.style:
            attrs.append(f'style="{escape(_style_attr(self.style))}"')
        if src == self.src:
            attrs.append('crossorigin="anonymous"')
        if with_fallback:
            # client-side swap, once, when the browser's own load fails
            attrs.append(
                f'onerror="this.onerror=null;this.className+=\' image-fallback\';this.src=\'{escape(self.fallback_src)}\'"'
            )
        return Markup(f"<img {' '.join(attrs)}>")

    def _placeholder(self) -> Markup:
        style = {
            'display': 'flex',
            'align-items': 'center',
            'justify-content': 'center',
            'background-color': '#f0f0f0',
            'color': '#666',
            'font-size': '14px',
            'width': self.style.get('width', PLACEHOLDER_SIZE),
            'height': self.style.get('height', PLACEHOLDER_SIZE),
        }
        style.update(self.style)
        css_class = f"image-placeholder {self.css_class}".strip()
        return Markup(
            f'<div class="{escape(css_class)}" style="{escape(_style_attr(style))}">'
            f'{escape(self.alt or "Image")}</div>'
        )

    def __html__(self) -> str:
        return self.render()


def image_with_fallback(
    src: str | None,
    alt: str = '',
    fallback_src: str = '',
    class_: str = '',
    style: Optional[Dict[str, str]] = None,
) -> Markup:
    """Jinja global: render an image with its shape check applied."""
    return ImageWithFallback(src, alt, fallback_src=fallback_src, css_class=class_, style=style).render()


__all__ = [
    'ImageState',
    'ImageWithFallback',
    'image_with_fallback',
    'validate_image_url',
]
