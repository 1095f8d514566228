"""The document the payment buttons render into."""

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass
class Frame:
    src: str
    name: str = ''

    @property
    def hostname(self):
        return urlparse(self.src).hostname or ''

    def served_by(self, domain):
        host = self.hostname
        return host == domain or host.endswith('.' + domain)


class ButtonHost:
    """A button container plus the frames injected into its page.

    The SDK injects frames here directly; nothing removes them except
    :meth:`remove_frames`.
    """

    def __init__(self, container_id='paypal-button-container'):
        self.container_id = container_id
        self.frames = []

    def inject(self, frame):
        self.frames.append(frame)

    def frames_from(self, domain):
        return [frame for frame in self.frames if frame.served_by(domain)]

    def remove_frames(self, domain):
        """Drop every frame served from ``domain`` or a subdomain; return the count."""
        kept = [frame for frame in self.frames if not frame.served_by(domain)]
        removed = len(self.frames) - len(kept)
        self.frames = kept
        return removed
