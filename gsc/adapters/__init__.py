"""
Adapters: command-line interface and configuration files
"""
