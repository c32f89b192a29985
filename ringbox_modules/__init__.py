"""Bundled Ringbox modules"""
