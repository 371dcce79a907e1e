from govuk_prototype_kit import main

main()
