"""
Formatting rules of the recipe column in the running environments table.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ailab_tests.types.catalog import Catalog, EnvironmentCell


def format_ports(ports: Optional[Sequence[int]]) -> Optional[str]:
    """Badge text for a list of ports: nothing, ``PORT n`` or ``PORTS n, m``."""
    if not ports:
        return None
    label = "PORT" if len(ports) == 1 else "PORTS"
    return f"{label} {', '.join(str(port) for port in ports)}"


@dataclass
class RecipeColumnView:
    recipe_name: str
    ports_badge: Optional[str] = None

    def texts(self) -> List[str]:
        """Every text node the column renders, in display order."""
        texts = [self.recipe_name]
        if self.ports_badge:
            texts.append(self.ports_badge)
        return texts


def render_recipe_column(cell: EnvironmentCell, catalog: Catalog) -> RecipeColumnView:
    """Resolve the recipe display name and the application ports badge.

    Unknown recipe ids are shown as-is.
    """
    recipe = catalog.find_recipe(cell.recipe_id)
    name = recipe.name if recipe is not None else cell.recipe_id
    return RecipeColumnView(recipe_name=name, ports_badge=format_ports(cell.app_ports))
