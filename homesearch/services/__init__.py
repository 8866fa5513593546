"""Service layer: listings provider and search pipeline"""
