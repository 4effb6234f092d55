"""Leave Portal — leave-request lifecycle service."""
