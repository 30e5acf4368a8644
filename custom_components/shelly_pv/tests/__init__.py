"""Tests for the Shelly PV integration."""
