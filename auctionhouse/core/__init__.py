"""Auction engine core: state, ledger, storage and configuration"""
