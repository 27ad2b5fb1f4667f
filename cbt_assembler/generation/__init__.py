"""AI generation leg: prompts, provider controllers, fallback and normalization."""
