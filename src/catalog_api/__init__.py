"""Image upload backend for products, articles and Q&A entries."""
