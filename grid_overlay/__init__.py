"""Chorded grid selector: layout, selection state, rendering and animation."""
