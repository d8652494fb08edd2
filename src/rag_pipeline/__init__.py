"""Owner-scoped RAG pipeline for video transcripts, documents and comments.

This package ingests YouTube transcripts, YouTube comments and document text
into a Supabase vector store tagged per owner, and answers questions about
them with retrieval-augmented generation and cited sources.
"""
