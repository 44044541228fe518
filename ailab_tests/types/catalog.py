from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Recipe:
    id: str
    name: str
    description: str = ""
    readme: str = ""
    repository: str = ""
    categories: List[str] = field(default_factory=list)
    models: List[str] = field(default_factory=list)


@dataclass
class Catalog:
    recipes: List[Recipe] = field(default_factory=list)
    models: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)

    def find_recipe(self, recipe_id: str) -> Optional[Recipe]:
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None


@dataclass
class EnvironmentCell:
    """A row of the running environments table."""
    recipe_id: str
    app_ports: Optional[List[int]] = None
    model_ports: Optional[List[int]] = None
