"""Grid overlay spoons: PasteLibrary, AppWindowSwitcher and AppLauncherSwitcher."""
