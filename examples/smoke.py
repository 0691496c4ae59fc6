import logging
import sys
import time

from streamchat import Dispatcher, Role, load_settings


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    provider_id = sys.argv[1] if len(sys.argv) > 1 else "local"

    with Dispatcher(settings) as dispatcher:
        for descriptor in dispatcher.list_providers():
            kind = "api" if descriptor.network_backed else "simulated"
            print(f"{descriptor.id:<24} {descriptor.display_name(settings.language)} ({kind})")

        print(f"\nChatting with {provider_id}. Empty line quits.")
        seen = 0
        while True:
            text = input("> ")
            if not text.strip():
                break
            dispatcher.submit(text, provider_id)

            # Poll the store the way a render loop would.
            while dispatcher.store.pending_ids():
                time.sleep(0.1)
            messages = dispatcher.store.snapshot()
            for message in messages[seen:]:
                if message.role is Role.ASSISTANT:
                    print(message.content)
            seen = len(messages)


if __name__ == "__main__":
    main()
