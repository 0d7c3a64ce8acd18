"""Utilities package for the sync job"""
