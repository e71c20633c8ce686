"""Knowledge-check assessment engine."""
