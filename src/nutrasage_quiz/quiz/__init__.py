"""Quiz session flows: load questions, save progressively or in one go, reload results."""
