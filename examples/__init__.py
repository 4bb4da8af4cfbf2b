"""Runnable EKF-SLAM examples."""
