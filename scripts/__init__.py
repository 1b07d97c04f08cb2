"""Training, evaluation and benchmark scripts"""
