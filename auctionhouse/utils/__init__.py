"""Logging, validation and display helpers"""
