#!/usr/bin/env python3
"""
Fruit Catalog and Session Selection

Holds the fruit definitions shown on the AR page and the per-session choice
of which fruit to display. The choice lives in any string key-value store
scoped to the browser session (sessionStorage on the page, a dict in tests).
"""

import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, MutableMapping, Optional, Sequence, Tuple, Union

from glb_container import InvalidInput, IOFailure

logger = logging.getLogger(__name__)

FRUIT_SESSION_KEY = 'ar_fruit_session'


@dataclass(frozen=True)
class Fruit:
    id: str
    name: str
    emoji: str
    description: str
    model: str
    color: str  # card colour on the page
    base_color: Tuple[float, float, float]  # sphere tint


def _fruit(fruit_id, name, emoji, description, color, base_color) -> Fruit:
    return Fruit(fruit_id, name, emoji, description, f"assets/models/{fruit_id}.glb", color, base_color)


FRUITS: List[Fruit] = [
    _fruit('apple', 'Apple', '🍎', 'A crisp, sweet fruit perfect for any occasion',
           '#ff6b6b', (0.8, 0.1, 0.1)),
    _fruit('banana', 'Banana', '🍌', 'A tropical delight, rich in potassium',
           '#ffd93d', (1.0, 0.9, 0.2)),
    _fruit('orange', 'Orange', '🍊', 'Bursting with vitamin C and sunshine',
           '#ff9f43', (1.0, 0.5, 0.0)),
    _fruit('strawberry', 'Strawberry', '🍓', 'Sweet, juicy, and romantically red',
           '#ee5a5a', (0.9, 0.2, 0.3)),
    _fruit('pineapple', 'Pineapple', '🍍', 'The crown jewel of tropical fruits',
           '#f8d56b', (0.9, 0.7, 0.1)),
    _fruit('watermelon', 'Watermelon', '🍉', "Summer's favorite refreshing treat",
           '#26de81', (0.2, 0.7, 0.3)),
    _fruit('grapes', 'Grapes', '🍇', 'Clusters of sweet, bite-sized perfection',
           '#a55eea', (0.5, 0.2, 0.6)),
    _fruit('pear', 'Pear', '🍐', 'Elegantly shaped and delicately sweet',
           '#c4e538', (0.7, 0.8, 0.2)),
    _fruit('kiwi', 'Kiwi', '🥝', 'Fuzzy outside, tangy-sweet inside',
           '#7bed9f', (0.4, 0.3, 0.2)),
    _fruit('mango', 'Mango', '🥭', 'The king of fruits, lusciously tropical',
           '#ffa502', (1.0, 0.6, 0.1)),
]


def _parse_fruit(item: Dict[str, Any]) -> Fruit:
    try:
        fruit_id = item['id']
        if not isinstance(fruit_id, str) or not fruit_id or fruit_id in ('.', '..') \
                or any(sep in fruit_id for sep in ('/', '\\')):
            raise InvalidInput(f"Invalid fruit id {fruit_id!r}")
        return Fruit(
            id=fruit_id,
            name=item.get('name', fruit_id.title()),
            emoji=item.get('emoji', ''),
            description=item.get('description', ''),
            model=item.get('model', f"assets/models/{fruit_id}.glb"),
            color=item.get('color', '#ffffff'),
            base_color=tuple(item.get('base_color', (1.0, 1.0, 1.0))),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise InvalidInput(f"Invalid fruit definition {item!r}: {e}") from e


def load_catalog(source: Union[str, List[Dict[str, Any]], Dict[str, Any]]) -> List[Fruit]:
    """
    Load a fruit catalog.

    Args:
        source: Can be one of:
            - List of fruit dictionaries
            - Dictionary with a 'fruits' list
            - JSON string containing either of the above
            - Path to a JSON file containing either of the above
    """
    try:
        if isinstance(source, (list, dict)):
            catalog_def = source
        elif isinstance(source, str):
            source = source.strip()
            if source.startswith(('{', '[')):
                catalog_def = json.loads(source)
            else:
                with open(source, 'r', encoding='utf-8') as f:
                    catalog_def = json.load(f)
        else:
            raise InvalidInput(f"Unsupported catalog source type: {type(source)}")
    except FileNotFoundError:
        raise InvalidInput(f"Catalog file not found: {source}")
    except OSError as e:
        raise IOFailure(f"Cannot read catalog {source}: {e}") from e
    except UnicodeDecodeError as e:
        raise InvalidInput(f"Catalog is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Invalid JSON in catalog: {e}")

    if isinstance(catalog_def, dict):
        if 'fruits' not in catalog_def:
            raise InvalidInput("Catalog definition must contain 'fruits' key")
        catalog_def = catalog_def['fruits']
    if not isinstance(catalog_def, list) or not catalog_def:
        raise InvalidInput("Catalog must be a non-empty list of fruits")

    return [_parse_fruit(item) for item in catalog_def]


def get_fruit_by_id(fruit_id: str, catalog: Sequence[Fruit] = FRUITS) -> Optional[Fruit]:
    for fruit in catalog:
        if fruit.id == fruit_id:
            return fruit
    return None


class FruitSession:
    """Session-scoped fruit selection backed by a key-value store."""

    def __init__(self, storage: MutableMapping[str, str], catalog: Sequence[Fruit] = FRUITS,
                 rng: random.Random = None):
        if not catalog:
            raise InvalidInput("Catalog must not be empty")
        self.storage = storage
        self.catalog = list(catalog)
        self.rng = rng or random.Random()

    def _random_fruit(self) -> Fruit:
        return self.rng.choice(self.catalog)

    def get_or_init_selection(self) -> str:
        """Return the stored fruit id, picking and storing one on first use."""
        stored_id = self.storage.get(FRUIT_SESSION_KEY)
        if stored_id and get_fruit_by_id(stored_id, self.catalog):
            return stored_id

        fruit = self._random_fruit()
        self.storage[FRUIT_SESSION_KEY] = fruit.id
        logger.debug("New session fruit: %s", fruit.id)
        return fruit.id

    def set_selection(self, fruit_id: str) -> None:
        if get_fruit_by_id(fruit_id, self.catalog) is None:
            raise InvalidInput(f"Unknown fruit: {fruit_id!r}")
        self.storage[FRUIT_SESSION_KEY] = fruit_id

    def pick_another(self) -> str:
        """Pick a fruit different from the current one (when there is a choice)."""
        current_id = self.storage.get(FRUIT_SESSION_KEY)
        candidates = [f for f in self.catalog if f.id != current_id] or self.catalog
        fruit = self.rng.choice(candidates)
        self.storage[FRUIT_SESSION_KEY] = fruit.id
        return fruit.id

    def current_fruit(self) -> Fruit:
        return get_fruit_by_id(self.get_or_init_selection(), self.catalog)
