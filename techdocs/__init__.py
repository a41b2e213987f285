"""
TechDocs - technical and functional specifications from a source tree.

Flow:
1. Ingest files from GitHub (tree + blobs) or a local directory
2. Rank them so the most relevant files survive prompt truncation
3. Run the analysis stages against an LLM
4. Split the combined output into a technical and a functional document
5. Optionally email both documents
"""

__version__ = "1.0.0"
