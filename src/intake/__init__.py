"""
Input acquisition for the fertilizer suggestion screen.

Modules:
    session      — Session, FileDescriptor and LocationState value objects
    coordinator  — Apply file/crop/location acquisitions to the session
    files        — File picker and file opener adapters
    geolocation  — Browser and native location providers
    platform     — Pick the adapters for web or native hosts
    review       — Render a read-only summary of the session
    config       — Environment-driven settings
    errors       — Error taxonomy and user notices
    console      — Terminal prompts read on daemon threads
"""
