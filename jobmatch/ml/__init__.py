"""
Machine learning components for the job matching core.

Submodules:
- embeddings: Text embedding and similarity search
"""
