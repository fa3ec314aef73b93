"""Domain services: YouTube, AI summaries and badges."""
