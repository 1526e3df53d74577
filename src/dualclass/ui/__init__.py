"""Client-side lesson view model: state, reducers, quiz checks and theming."""
