"""The shopper's cart.

:class:`CartStore` is the single source of truth for what the current
shopper intends to buy. Every mutation is written through to a string-valued
key/value ``storage`` (a :class:`~cart.storage.LocalStorage` for headless
clients, the Django session for the cart API) so the cart survives reloads.

The persisted value is untrusted input: anything that does not have the
expected shape is discarded and the cart starts empty.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = 'gallery-cart'

TWO_PLACES = Decimal('0.01')


def format_amount(value) -> str:
    """Render a money amount as a fixed 2-decimal string (``"250.00"``)."""
    return str(Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def _as_int(value) -> Optional[int]:
    # bool is an int subclass; a stored ``true`` is never a valid id or quantity.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


@dataclass(frozen=True)
class ArtworkSnapshot:
    """Value copy of an artwork taken when it was added to the cart."""

    id: int
    title: str
    price: str
    image_url: str = ''
    artist: Optional[dict] = None
    availability: str = 'available'

    @property
    def unit_price(self) -> Decimal:
        return Decimal(str(self.price))

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'price': self.price,
            'imageUrl': self.image_url,
            'artist': dict(self.artist) if self.artist else None,
            'availability': self.availability,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ArtworkSnapshot':
        """Build a snapshot from an API/storage payload.

        Raises ``ValueError`` when the id is missing or the price is not a
        decimal number.
        """
        if not isinstance(data, Mapping):
            raise ValueError("artwork must be an object")
        artwork_id = _as_int(data.get('id'))
        if artwork_id is None:
            raise ValueError("artwork id is missing or not an integer")
        raw_price = data.get('price')
        if isinstance(raw_price, bool) or raw_price is None:
            raise ValueError("artwork price is missing")
        try:
            price = Decimal(str(raw_price))
        except InvalidOperation:
            raise ValueError(f"artwork price {raw_price!r} is not a number")
        if not price.is_finite():
            raise ValueError(f"artwork price {raw_price!r} is not a number")
        artist = data.get('artist')
        return cls(
            id=artwork_id,
            title=str(data.get('title') or ''),
            price=format_amount(price),
            image_url=str(data.get('imageUrl') or data.get('image_url') or ''),
            artist=dict(artist) if isinstance(artist, Mapping) else None,
            availability=str(data.get('availability') or 'available'),
        )


@dataclass
class LineItem:
    """One (artwork, quantity) pair in the cart."""

    artwork: ArtworkSnapshot
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.artwork.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {'artwork': self.artwork.to_dict(), 'quantity': self.quantity}


def serialize_items(items) -> str:
    return json.dumps([item.to_dict() for item in items])


def deserialize_items(raw: Optional[str]) -> list:
    """Parse the persisted cart.

    Returns an empty list for a missing value; raises ``ValueError`` for
    anything malformed, including duplicate artwork ids.
    """
    if raw is None or raw == '':
        return []
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("persisted cart is not a list")
    items = []
    seen = set()
    for entry in data:
        if not isinstance(entry, Mapping):
            raise ValueError("cart entry is not an object")
        artwork = ArtworkSnapshot.from_dict(entry.get('artwork'))
        quantity = _as_int(entry.get('quantity'))
        if quantity is None or quantity < 1:
            raise ValueError(f"invalid quantity for artwork {artwork.id}")
        if artwork.id in seen:
            raise ValueError(f"duplicate line for artwork {artwork.id}")
        seen.add(artwork.id)
        items.append(LineItem(artwork=artwork, quantity=quantity))
    return items


class CartStore:
    """In-memory cart persisted to ``storage`` under :data:`CART_STORAGE_KEY`.

    Operations are synchronous and never raise for ordinary misuse: removing
    an absent artwork or setting a quantity below one leaves the cart as is.
    Whether an artwork may be sold at all is for the caller to decide.
    """

    def __init__(self, storage, is_open=False, storage_key=CART_STORAGE_KEY):
        self._storage = storage
        self._storage_key = storage_key
        self.is_open = bool(is_open)
        self._items = self._load()

    def _load(self):
        try:
            raw = self._storage.get(self._storage_key)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read persisted cart: %s", exc)
            return []
        try:
            return deserialize_items(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding malformed persisted cart: %s", exc)
            return []

    def _persist(self):
        self._storage[self._storage_key] = serialize_items(self._items)

    def _find(self, artwork_id):
        for item in self._items:
            if item.artwork.id == artwork_id:
                return item
        return None

    @property
    def items(self):
        """Snapshot copies of the line items, in insertion order."""
        return [replace(item) for item in self._items]

    def is_empty(self):
        return not self._items

    def add_to_cart(self, artwork, quantity=1):
        """Add ``artwork`` or bump the quantity of its existing line."""
        if quantity < 1:
            return
        if not isinstance(artwork, ArtworkSnapshot):
            artwork = ArtworkSnapshot.from_dict(artwork)
        existing = self._find(artwork.id)
        if existing is not None:
            existing.quantity += quantity
        else:
            self._items.append(LineItem(artwork=artwork, quantity=quantity))
        self._persist()

    def remove_from_cart(self, artwork_id):
        remaining = [item for item in self._items if item.artwork.id != artwork_id]
        if len(remaining) == len(self._items):
            return
        self._items = remaining
        self._persist()

    def update_quantity(self, artwork_id, quantity):
        """Set the quantity of a line; quantities below one are ignored.

        Use :meth:`remove_from_cart` to delete a line.
        """
        if quantity < 1:
            return
        item = self._find(artwork_id)
        if item is None:
            return
        item.quantity = quantity
        self._persist()

    def get_total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def get_total_price(self) -> Decimal:
        return sum((item.subtotal for item in self._items), Decimal('0.00'))

    def toggle_cart(self):
        self.is_open = not self.is_open
        return self.is_open

    def clear_cart(self):
        self._items = []
        self._persist()

    def as_dict(self):
        return {
            'items': [item.to_dict() for item in self._items],
            'totalItems': self.get_total_items(),
            'totalPrice': format_amount(self.get_total_price()),
            'isOpen': self.is_open,
        }
