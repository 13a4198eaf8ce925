# Core Package
