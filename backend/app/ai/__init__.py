"""Model orchestration core: backends, prompts, validation and chains."""
