"""Bike match quiz: score the catalog snapshot against shopper answers."""
