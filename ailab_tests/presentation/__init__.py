from .column_recipe import RecipeColumnView, format_ports, render_recipe_column

__all__ = ["RecipeColumnView", "format_ports", "render_recipe_column"]
