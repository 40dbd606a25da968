"""Tab grouping core: response parsing, repair, gating and orchestration."""
