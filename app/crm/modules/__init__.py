"""
Feature modules live under this package.

Keep module boundaries clean: each module should own its routes/models/queries,
while reusing platform primitives (config, DB session, error types).
"""
