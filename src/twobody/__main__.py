from twobody.cli import run

if __name__ == "__main__":
    run()
