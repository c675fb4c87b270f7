"""Loading splash overlay shown while workspace state is restored."""

from __future__ import annotations

from textual.widgets import Static


class SplashOverlay(Static):
    """Full-screen loading overlay.

    The widget stays mounted for the lifetime of the app; the splash
    controller toggles it through ``SplashOverlayView``.
    """

    DEFAULT_CSS = """
    SplashOverlay {
        layer: overlay;
        width: 100%;
        height: 100%;
        content-align: center middle;
        text-style: bold;
        background: $background;
        color: $text;
        display: none;
    }

    SplashOverlay.dark {
        background: $panel-darken-2;
    }

    SplashOverlay.fading {
        text-opacity: 50%;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("Restoring workspace...", **kwargs)

    @property
    def is_showing(self) -> bool:
        return bool(self.display) and not self.has_class("fading")

    @property
    def is_fading(self) -> bool:
        return bool(self.display) and self.has_class("fading")


class SplashOverlayView:
    """SplashView over a mounted SplashOverlay."""

    def __init__(self, overlay: SplashOverlay) -> None:
        self.overlay = overlay

    def show(self, light: bool) -> None:
        self.overlay.remove_class("fading")
        self.overlay.set_class(not light, "dark")
        self.overlay.display = True

    def fade(self) -> None:
        self.overlay.add_class("fading")

    def remove(self) -> None:
        self.overlay.remove_class("fading")
        self.overlay.display = False
