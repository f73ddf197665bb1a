"""HTTP surface of the scaffolding service."""
