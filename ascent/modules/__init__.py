"""Feature modules: progression and review, plus shared service plumbing."""
