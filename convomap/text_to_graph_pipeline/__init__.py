"""
Text-to-graph pipeline: capture buffer -> chunk classifier -> graph builder -> layout
"""
