"""Services: signing workflow and signature verification."""
