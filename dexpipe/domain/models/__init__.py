"""Domain models: wire-format records decoded from PokeAPI and the
value objects the pipeline passes between layers."""
