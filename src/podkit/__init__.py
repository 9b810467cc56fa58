"""podkit: globbing and xcconfig patching for CocoaPods-style Xcode projects."""

from podkit.logs import configure_default_logging

configure_default_logging()
