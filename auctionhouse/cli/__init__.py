"""Command line front end"""
