"""Command-line interface for the proposal register"""
