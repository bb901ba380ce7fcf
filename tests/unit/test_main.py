"""Unit tests for main application entry point."""

import pytest
from fastapi import FastAPI

import src.main as main


@pytest.mark.unit
class TestMainModule:
    """Tests for the uvicorn entry module."""

    def test_placeholder_app_in_test_mode(self) -> None:
        """Test that importing main in test mode does not build the real application."""
        assert isinstance(main.app, FastAPI)
        assert not hasattr(main.app.state, "cart_service")
