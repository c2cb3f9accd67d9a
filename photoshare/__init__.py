"""QR Photoshare backend."""
