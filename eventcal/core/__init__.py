"""Timezone lookup and clock utilities."""
