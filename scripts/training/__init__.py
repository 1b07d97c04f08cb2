"""Training scripts"""
