"""Generation job pipeline: submission, status tracking and result normalisation."""
