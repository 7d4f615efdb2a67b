from .razorpay_client import RazorpayClient, compute_signature, generate_receipt_id, verify_signature

__all__ = ["RazorpayClient", "compute_signature", "generate_receipt_id", "verify_signature"]
