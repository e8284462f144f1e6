"""Configuration loading and secrets"""
