"""Leave policy and workflow engine."""
