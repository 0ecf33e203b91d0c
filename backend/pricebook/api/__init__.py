"""HTTP API exposing the pricing engine."""
