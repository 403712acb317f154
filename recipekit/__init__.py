"""recipekit -- declarative project scaffolding from composable recipes."""

__version__ = "0.1.0"
