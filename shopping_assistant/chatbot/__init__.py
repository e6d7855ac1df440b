"""Rule-based query understanding and product ranking."""
